"""memento-insights - AI theme summaries for journal entries, with a time-boxed cache"""

__version__ = "0.1.0"
