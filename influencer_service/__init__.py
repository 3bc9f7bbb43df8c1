"""
Influencer Service - influencer catalog search aggregating the local store
and an external statistics provider
"""
