"""
Directory call handlers.

- tools: company, event and podcast tools
- resources: blockza:// documents
- prompts: analysis and recommendation prompts
"""
