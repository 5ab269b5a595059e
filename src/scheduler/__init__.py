"""Scheduler module for contest aggregation and reminder tasks.

Schedule overview:
  - every 60 minutes - Contest aggregation (Codeforces + LeetCode schedule),
                       also run once at start-up
  - every 60 seconds - Reminder tick: email subscribers of contests that
                       start in 20 minutes (+/- 60 seconds)
"""
