"""HTTP API for memento-insights"""
