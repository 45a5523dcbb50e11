"""OpenAI chat-completions access shared by the drafting and analysis slices.

Prompts and answers hold contract text, so nothing in this package logs them.
"""
