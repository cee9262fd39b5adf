"""
Intelligence Module
Inference provider access for the analysis pipeline
"""
