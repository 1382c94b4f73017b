"""Mirror a website into a directory of HTML files, resumable across runs."""

__version__ = "0.1.0"
