"""
Routes Module

One router factory per URL prefix, plus the delivery socket handler.
"""
