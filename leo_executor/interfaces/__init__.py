"""
Interfaces Layer

Driving adapters that initiate interactions with the system:
the HTTP API and the message-passing worker.
"""
