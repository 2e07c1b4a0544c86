"""
Core translation pipeline: chunking, name consensus, scouting and translation.
"""
