"""Web service function registry and dispatch."""
