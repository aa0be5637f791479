"""
HTTP routes for the StudySync AI backend

One router per endpoint, composed by server.py:
- health.py: GET / and /api/test
- transcript.py: POST /api/transcript
- video.py: POST /api/video
- playlist.py: POST /api/playlist (Data API shaped response)
- exam.py: POST /api/generate-test-series
- pdf_process.py: POST /api/pdf-process
"""
