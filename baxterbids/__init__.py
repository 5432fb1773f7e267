"""
BaxterBids — Government Bid Tracking and Vendor Quote Comparison

Packages:
    core/          Shared configuration and paths
    quotes/        Quote model, ingestion, normalizer, comparison engine
    bids/          Bid and RFQ display derivations for the dashboard
    integrations/  Supabase quote/bid store client
    forms/         CSV and PDF comparison exports
    api/           Dashboard JSON routes
"""
