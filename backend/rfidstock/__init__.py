"""
RFID Stock backend: tenant resolution, access control and permissions
"""
