"""
Controller services:
- config - settings loading and validation
- control - battery band control loop
- device - battery telemetry and smart switch adapters
"""
