"""Built-in completion providers"""
