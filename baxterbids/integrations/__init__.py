"""External store integrations.

Modules:
    supabase   — PostgREST client for bids, RFQs, vendor quotes
"""
