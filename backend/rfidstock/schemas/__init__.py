"""
Pydantic schemas for RFID Stock
"""
