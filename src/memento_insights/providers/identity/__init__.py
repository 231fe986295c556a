"""Built-in identity providers"""
