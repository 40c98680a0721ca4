"""Audio capture adapters that feed the pitch oracle."""
