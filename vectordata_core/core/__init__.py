"""
Core Module

Settings, logging configuration, shared clients and the exception taxonomy.
"""
