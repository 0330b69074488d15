"""Slack Word of the Day"""
