"""Core gameplay primitives (tiles, board, word scanning, moves and events).

Kept free of FastAPI and asyncio concerns so it can be reused by the controller, API routes and tests.
"""
