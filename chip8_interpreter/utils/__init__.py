"""
Configuration, error handling and event utilities.
"""
