"""
Debrid proxy service.

A FastAPI application that relays requests to the Debrid-Link API and
manages user accounts, gift cards and transactions in MongoDB.
"""
