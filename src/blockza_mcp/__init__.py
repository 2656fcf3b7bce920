"""
Blockza Directory MCP Server

This package exposes the Blockza directory API over the Model Context Protocol:
- Tools: search and detail lookups for companies, events and podcasts, plus aggregate stats
- Resources: full listings, single records and category sets under the blockza:// scheme
- Prompts: analysis, comparison and recommendation templates filled from live directory data
"""

__version__ = "1.0.0"
