"""Business logic services.

Route handlers call into these modules; they own caching, provider routing,
and the query pipeline. Submodules are imported directly to keep import
order free of cycles.
"""
