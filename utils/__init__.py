"""
Analytics engine components
"""
