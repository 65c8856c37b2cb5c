"""
SupportDesk - client-side ticket aggregation and session handling on Supabase.
"""

__version__ = "0.1"
