"""
Booth Job Pipeline

decode -> normalize -> upload -> submit -> poll -> record + publish
"""
