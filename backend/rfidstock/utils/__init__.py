"""
Shared helpers for RFID Stock
"""
