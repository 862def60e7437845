"""
BAC Tutor backend: quiz-taking sessions and the AI tutoring proxy
"""
__version__ = "0.4.0"
