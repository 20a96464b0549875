"""
Fitness-coaching and social-feed API.
"""
