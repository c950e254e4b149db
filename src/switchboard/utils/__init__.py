"""Utility helpers for Switchboard"""
