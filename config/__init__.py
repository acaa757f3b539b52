"""Site configuration for the store directory collector"""
