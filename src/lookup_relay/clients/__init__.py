"""Outbound clients: the Discord gateway bot and the REST lookup client."""
