"""
Company Use Cases
"""

from .create_company_use_case import CompanyInfo, CreateCompanyUseCase

__all__ = ["CreateCompanyUseCase", "CompanyInfo"]
