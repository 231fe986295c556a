"""Built-in insight cache providers"""
