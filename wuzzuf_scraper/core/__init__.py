"""
Site-independent helpers: text sanitization, dates, URLs and HTTP.
"""
