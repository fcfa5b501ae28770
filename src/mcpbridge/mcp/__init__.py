"""MCP client and the FHIR MCP server."""
