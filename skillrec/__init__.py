"""
skillrec: skill extraction and hybrid course recommendation.

- extraction: multi-method skill extraction from free text
- engine: collaborative / content / market / behavioral fusion
- api / cli: FastAPI service and batch runner
"""
