"""
Semester Result Scraper

Batch retrieval of semester examination results from the university results
portal, normalized into structured student records.
"""

__version__ = "1.0.0"
__author__ = "Result Scraping Team"
