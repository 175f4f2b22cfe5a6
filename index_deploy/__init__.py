"""Deploy Azure AI Search index definitions from a folder of JSON files."""
