"""Date handling and pure progress calculators"""
