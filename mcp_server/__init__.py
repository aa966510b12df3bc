"""MCP tool server exposing rdk_core to LLM agents."""
