"""
AI generation package for checklist suggestions and dictation parsing.
"""
