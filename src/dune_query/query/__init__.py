"""Query execution: parameters, HTTP transport and the execution client."""
