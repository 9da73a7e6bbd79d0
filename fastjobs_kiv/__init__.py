"""FastJobs employer portal automation: session reuse, job listings, bulk KIV."""

__version__ = "0.1.0"
