"""
Services Package

This package contains business logic services that are:
- Separate from HTTP handling (routers)
- Reusable from the API, the scheduler and scripts
- Easier to test in isolation

Current services:
- books.py: Book catalog (ISBN uniqueness, availability flag)
- authors.py: Authors, with a guard against deleting authors that have books
- borrowings.py: Loan lifecycle (borrow, return, overdue detection)
- scheduler.py: Periodic overdue sweep (APScheduler)
- events.py: Business event records and the logging event sink
- rate_limiter.py: Rate limiting with slowapi
"""
