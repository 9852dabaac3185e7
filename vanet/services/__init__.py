"""Service layer shared by the API routers."""
