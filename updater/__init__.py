"""
ISO reference data updater - refreshes language.tab and country.json
"""

__version__ = "0.1.0"
