"""Core services for Switchboard"""
