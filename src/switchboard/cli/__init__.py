"""Command line interface for Switchboard"""
