"""Intent processing helpers.

Centralizes status guards so every intent, whether it comes from the HTTP
layer or directly from tests, is checked the same way before it touches state.
"""
