"""Core building blocks: content handling, model-backed stages, compilation."""
