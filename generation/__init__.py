"""
Skill Test MCQ Generation
generation/

1. GPT Client      — OpenAI chat completions in JSON-object mode
2. MCQ Generator   — prompt building + lenient coercion of the question bank
"""
