"""Command line interface for memento-insights"""
