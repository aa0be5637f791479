"""
Core business logic modules for the StudySync AI backend

This package contains the core functionality modules:
- fallback.py: ordered provider chain
- resolver.py: YouTube URL / query → normalized video items
- transcript.py: YouTube URL → caption segments
- llm.py: chat messages → Groq completion text
- summarize.py: long document → chunked, consolidated answer
- exam_generator.py: topic → validated multiple-choice questions
"""
