"""
Comment moderator user entity package.
"""
