"""Command-line tools for Ledge"""
