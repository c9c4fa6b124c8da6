"""Hacker News listing client, pagination and the ``/stories`` router."""
