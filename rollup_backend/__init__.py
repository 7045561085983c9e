"""
Roll-up Tree Backend - the application around the core.

Holds the loaded tree and its renderer, serves user commands over HTTP,
streams animation frames over WebSocket, and provides the CLI.
"""
