"""Dune Sea Diagnostics site server.

Serves the website, uploaded images and the /api endpoints.

Run with: python server.py
Configuration comes from the environment (see .env.example).
"""
from dunesea.web import main


if __name__ == '__main__':
    main()
