"""Pydantic request / response schemas for the tax engine and API endpoints.

Field names are camelCase so the wizard's JSON form-data blob validates
as-is:
  - Entries    → ThaiIncomeEntry, ForeignIncomeEntry, ExpenseEntry, DividendEntry
  - Forms      → one variant per employment profile, tagged on ``employmentType``
  - Results    → TaxResult and the per-component results it is assembled from

Numeric inputs are normalised rather than rejected: missing, malformed or
negative amounts become 0 (see ``thaitax.utils.helpers``), and null or
unrecognised boolean flags become False.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, Field, computed_field, model_validator

from thaitax.config import settings
from thaitax.utils.helpers import is_blank, safe_ratio, to_amount, to_count, to_month


# ── Enumerations ──────────────────────────────────────────────────────────

class IncomeType(str, Enum):
    """Revenue Code income classifications."""
    SALARY = "salary_40_1"
    LIBERAL_PROFESSION = "liberal_profession_40_6"
    CONTRACTOR = "contractor_40_7"
    BUSINESS_SALES = "business_sales_40_8"
    RENTAL = "rental_40_5"
    DIVIDEND = "dividend"
    OTHER = "other"


class ExpenseCategory(str, Enum):
    OFFICE_SUPPLIES = "office_supplies"
    EQUIPMENT = "equipment"
    SOFTWARE = "software"
    TRAVEL = "travel"
    COMMUNICATION = "communication"
    PROFESSIONAL_SERVICES = "professional_services"
    RENT = "rent"
    UTILITIES = "utilities"
    MARKETING = "marketing"
    INSURANCE = "insurance"
    OTHER = "other"


class ExpenseMethod(str, Enum):
    """How the expense deduction is chosen (see ``resolve_expense_deduction``)."""
    AUTO_COMPARE = "auto_compare"
    FORCE_FLAT = "force_flat"
    FORCE_ACTUAL = "force_actual"


class VisaType(str, Enum):
    REGULAR = "regular"
    LTR_WEALTHY_GLOBAL = "ltr_wealthy_global"
    LTR_WEALTHY_PENSIONER = "ltr_wealthy_pensioner"
    LTR_WORK_FROM_THAILAND = "ltr_work_from_thailand"
    LTR_HIGHLY_SKILLED = "ltr_highly_skilled"


class DividendType(str, Enum):
    THAI_LISTED = "thai_listed"
    THAI_UNLISTED = "thai_unlisted"
    FOREIGN = "foreign"
    OTHER = "other"


class BusinessCategory(str, Enum):
    RETAIL_TRADE = "retail_trade"
    MANUFACTURING = "manufacturing"
    SERVICE_BUSINESS = "service_business"
    RESTAURANT_FOOD = "restaurant_food"
    TRANSPORTATION = "transportation"
    CONSTRUCTION = "construction"
    PROFESSIONAL_SERVICE = "professional_service"
    RENTAL_PROPERTY = "rental_property"
    AGRICULTURE = "agriculture"
    OTHER_BUSINESS = "other_business"


# ── Lenient field types ───────────────────────────────────────────────────

def _to_text(value: Any) -> str:
    return "" if value is None else str(value)


def _to_code(default: str):
    """Stripped string code; blank falls back to *default*."""
    def _normalise(value: Any) -> str:
        if is_blank(value):
            return default
        return str(value).strip()
    return _normalise


def _to_choice(enum_cls: type[Enum], default: Enum):
    """Enum member by value; unknown values fall back to *default*."""
    def _normalise(value: Any) -> Enum:
        try:
            return enum_cls(value)
        except (TypeError, ValueError):
            return default
    return _normalise


def _to_marital_status(value: Any) -> str:
    return value if value in ("single", "married") else ""


def _to_flag(value: Any) -> bool:
    """JSON booleans pass through; null and unrecognised values are False."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return False


def _to_optional_date(value: Any) -> Optional[str]:
    return None if is_blank(value) else str(value).strip()


Amount = Annotated[float, BeforeValidator(to_amount)]
Count = Annotated[int, BeforeValidator(to_count)]
Month = Annotated[int, BeforeValidator(to_month)]
Days = Annotated[int, BeforeValidator(lambda v: to_count(v, upper=365))]
Text = Annotated[str, BeforeValidator(_to_text)]
Flag = Annotated[bool, BeforeValidator(_to_flag)]
OptionalDate = Annotated[Optional[str], BeforeValidator(_to_optional_date)]
IncomeTypeCode = Annotated[str, BeforeValidator(_to_code(IncomeType.OTHER.value))]
ExpenseCategoryCode = Annotated[str, BeforeValidator(_to_code(ExpenseCategory.OTHER.value))]
MaritalStatus = Annotated[
    Literal["", "single", "married"], BeforeValidator(_to_marital_status)
]
ExpenseMethodChoice = Annotated[
    ExpenseMethod, BeforeValidator(_to_choice(ExpenseMethod, ExpenseMethod.AUTO_COMPARE))
]
VisaTypeChoice = Annotated[
    VisaType, BeforeValidator(_to_choice(VisaType, VisaType.REGULAR))
]
DividendTypeChoice = Annotated[
    DividendType, BeforeValidator(_to_choice(DividendType, DividendType.OTHER))
]
BusinessCategoryChoice = Annotated[
    BusinessCategory,
    BeforeValidator(_to_choice(BusinessCategory, BusinessCategory.OTHER_BUSINESS)),
]


# ══════════════════════════════════════════════════════════════════════════
# Input records
# ══════════════════════════════════════════════════════════════════════════

class ThaiIncomeEntry(BaseModel):
    """A single Thai-source income payment."""
    id: Text = ""
    grossAmount: Amount = Field(0.0, description="Gross amount in THB")
    incomeType: IncomeTypeCode = Field(
        IncomeType.OTHER.value, description="Revenue Code section, e.g. 'contractor_40_7'"
    )
    withholdingAmount: Amount = Field(0.0, description="Tax withheld at source (≤ gross)")
    monthReceived: Month = Field(0, description="1-12, or 0 when unknown")
    payerName: Text = ""
    description: Text = ""

    @model_validator(mode="after")
    def _cap_withholding(self) -> "ThaiIncomeEntry":
        if self.withholdingAmount > self.grossAmount:
            self.withholdingAmount = self.grossAmount
        return self


class ForeignIncomeEntry(BaseModel):
    """Foreign income with remittance tracking (2024+ rules)."""
    id: Text = ""
    amount: Amount = Field(0.0, description="Amount in original currency")
    currency: Text = "USD"
    amountThb: Amount = Field(0.0, description="Converted THB value, used for tax")
    dateEarned: Text = Field("", description="YYYY-MM-DD")
    dateRemitted: OptionalDate = Field(None, description="YYYY-MM-DD, null if not remitted")
    foreignTaxPaid: Amount = 0.0
    country: Text = ""
    description: Text = ""


class ExpenseEntry(BaseModel):
    """Actual business expense."""
    id: Text = ""
    category: ExpenseCategoryCode = ExpenseCategory.OTHER.value
    amount: Amount = 0.0
    hasReceipt: Flag = False
    description: Text = ""
    relatedIncomeType: Optional[str] = None


class ChildData(BaseModel):
    birthYear: Count = 0
    isStudent: Optional[bool] = None


class DividendEntry(BaseModel):
    """Dividend received by a company owner.

    ``withholdingTax`` is always derived: 10 % for Thai dividends, 0 otherwise.
    """
    id: Text = ""
    amount: Amount = 0.0
    dividendType: DividendTypeChoice = DividendType.THAI_UNLISTED
    withholdingTax: Amount = 0.0
    companyName: Text = ""
    dateReceived: Text = ""
    includeInPIT: Flag = False

    @model_validator(mode="after")
    def _derive_withholding(self) -> "DividendEntry":
        if self.dividendType in (DividendType.THAI_LISTED, DividendType.THAI_UNLISTED):
            self.withholdingTax = self.amount * settings.DIVIDEND_WITHHOLDING_RATE
        else:
            self.withholdingTax = 0.0
        return self


class BusinessProfile(BaseModel):
    businessName: Text = ""
    businessCategory: BusinessCategoryChoice = BusinessCategory.SERVICE_BUSINESS
    businessSubCategory: Optional[str] = None
    registrationType: Text = "unregistered"
    registrationNumber: Optional[str] = None
    yearsInOperation: Count = 0
    hasPhysicalLocation: Flag = False
    numberOfEmployees: Count = 0


class CompanyInfo(BaseModel):
    companyName: Text = ""
    companyType: Text = "limited_company"
    registrationNumber: Optional[str] = None
    ownershipPercentage: Amount = 100.0
    isDirector: Flag = True
    hasOtherShareholders: Flag = False

    @model_validator(mode="after")
    def _cap_ownership(self) -> "CompanyInfo":
        self.ownershipPercentage = min(self.ownershipPercentage, 100.0)
        return self


# ── Forms (tagged union on employmentType) ────────────────────────────────

class TaxpayerBase(BaseModel):
    """Profile, dependents and deduction claims shared by every form variant."""

    # Marital status + senior status
    maritalStatus: MaritalStatus = ""
    spouseHasNoIncome: Flag = False
    isAge65OrOlder: Flag = False
    daysInThailand: Days = 0

    # Dependents
    children: List[ChildData] = Field(default_factory=list)
    childrenEligibilityConfirmed: Flag = False
    numberOfParents: Count = 0
    parentsEligibilityConfirmed: Flag = False

    # Social security
    includeSocialSecurity: Flag = False
    socialSecurityContribution: Amount = 0.0

    # Deductions (claim flag + amount)
    hasLifeInsurance: Flag = False
    lifeInsurance: Amount = 0.0
    hasHealthInsurance: Flag = False
    healthInsurance: Amount = 0.0
    hasPensionFund: Flag = False
    pensionFund: Amount = 0.0
    hasProvidentFund: Flag = False
    providentFund: Amount = 0.0
    hasRMF: Flag = False
    rmf: Amount = 0.0
    hasSSF: Flag = False
    ssf: Amount = 0.0
    hasDonations: Flag = False
    donations: Amount = 0.0

    # Withholding declared on the form (salaried)
    taxWithheld: Amount = 0.0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def isThaiResident(self) -> bool:
        return self.daysInThailand >= settings.RESIDENCY_DAYS

    @property
    def spouseQualifies(self) -> bool:
        """Married with a spouse who has no income of their own."""
        return self.maritalStatus == "married" and self.spouseHasNoIncome


class SalariedForm(TaxpayerBase):
    employmentType: Literal["salaried"] = "salaried"
    annualIncome: Amount = Field(0.0, description="Annual employment income in THB")


class SelfEmployedBase(TaxpayerBase):
    """Thai + foreign income entries with an expense method (freelancer/sole prop)."""
    visaType: VisaTypeChoice = VisaType.REGULAR
    hasForeignIncome: Flag = False
    foreignIncomeEntries: List[ForeignIncomeEntry] = Field(default_factory=list)
    thaiIncomeEntries: List[ThaiIncomeEntry] = Field(default_factory=list)
    expenseMethod: ExpenseMethodChoice = ExpenseMethod.AUTO_COMPARE
    actualExpenses: List[ExpenseEntry] = Field(default_factory=list)
    liberalProfessionSubType: Optional[str] = Field(
        None, description="Sub-profession for 40(6) income, e.g. 'medical_practice'"
    )


class FreelancerForm(SelfEmployedBase):
    employmentType: Literal["freelancer"] = "freelancer"


class SoleProprietorForm(SelfEmployedBase):
    employmentType: Literal["sole_proprietor"] = "sole_proprietor"
    businessProfile: BusinessProfile = Field(default_factory=BusinessProfile)
    hasBusinessExpenses: Flag = False
    hasInventory: Flag = False
    usesSimplifiedBookkeeping: Flag = True


class CompanyOwnerForm(TaxpayerBase):
    employmentType: Literal["company_owner"] = "company_owner"
    companyInfo: CompanyInfo = Field(default_factory=CompanyInfo)
    salaryFromCompany: Amount = 0.0
    directorFees: Amount = 0.0
    otherCompanyBenefits: Amount = 0.0
    hasDividends: Flag = False
    dividendEntries: List[DividendEntry] = Field(default_factory=list)
    companyProfitAfterTax: Amount = Field(0.0, description="Informational only")
    salaryWithholdingTax: Amount = 0.0


TaxForm = Annotated[
    Union[SalariedForm, FreelancerForm, SoleProprietorForm, CompanyOwnerForm],
    Field(discriminator="employmentType"),
]


# ══════════════════════════════════════════════════════════════════════════
# Component results
# ══════════════════════════════════════════════════════════════════════════

# ── 1. Brackets ───────────────────────────────────────────────────────────

class BracketSlice(BaseModel):
    label: str
    lower: float
    upper: Optional[float] = Field(None, description="None for the open top bracket")
    rate: float
    taxableAmount: float
    tax: float


# ── 2. Allowances & deductions ────────────────────────────────────────────

class AllowanceBreakdown(BaseModel):
    personalAllowance: float
    spouseAllowance: float
    seniorAllowance: float
    childAllowance: float
    parentAllowance: float
    total: float


class DeductionBreakdown(BaseModel):
    socialSecurity: float
    lifeInsurance: float
    healthInsurance: float
    pensionFund: float
    providentFund: float
    rmf: float
    ssf: float
    donations: float
    donationCap: float = Field(..., description="10% of assessable income")
    retirementTotal: float = Field(..., description="pension + provident + RMF + SSF")
    exceedsCombinedRetirementCap: bool
    total: float


# ── 3. Expenses ───────────────────────────────────────────────────────────

class FlatRateBreakdown(BaseModel):
    incomeType: str
    grossAmount: float
    rate: float
    deduction: float


class ActualExpenseBreakdown(BaseModel):
    category: str
    amount: float
    hasReceipts: bool


class ExpenseComparisonResult(BaseModel):
    flatRateDeduction: float
    actualDeduction: float
    recommended: Literal["flat", "actual"]
    taxSavings: float = Field(..., description="|flat − actual| × marginal bracket rate")
    bracketRate: float
    flatBreakdown: List[FlatRateBreakdown]
    actualBreakdown: List[ActualExpenseBreakdown]
    recommendationText: str = ""
    warnings: List[str] = Field(
        default_factory=list, description="Problems found in the itemised expenses"
    )


class ExpenseDeductionResult(BaseModel):
    method: ExpenseMethod
    applied: Literal["flat", "actual"]
    deduction: float
    comparison: ExpenseComparisonResult


# ── 4. Foreign income ─────────────────────────────────────────────────────

class ForeignIncomeTaxability(BaseModel):
    entry: ForeignIncomeEntry
    isTaxable: bool
    reasonCode: Literal[
        "not_resident",
        "ltr_exempt",
        "date_earned_missing",
        "earned_before_cutoff",
        "not_remitted",
        "taxable",
    ]
    reason: str
    taxableAmount: float
    foreignTaxCredit: float = Field(..., description="Maximum potential credit")
    warnings: List[str] = Field(
        default_factory=list, description="Data problems; they never change taxability"
    )


class ForeignIncomeAnalysis(BaseModel):
    entries: List[ForeignIncomeTaxability]
    totalForeignIncome: float
    taxableForeignIncome: float
    nonTaxableForeignIncome: float
    totalForeignTaxPaid: float
    totalForeignTaxCredit: float
    ltrExemptionApplied: bool
    residencyStatus: str = ""
    residencyDescription: str = ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def entryCount(self) -> int:
        return len(self.entries)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def taxableEntryCount(self) -> int:
        return sum(1 for r in self.entries if r.isTaxable)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def effectiveForeignTaxRate(self) -> float:
        """Foreign tax paid as a share of total foreign income."""
        return safe_ratio(self.totalForeignTaxPaid, self.totalForeignIncome)


# ── 5. Income ─────────────────────────────────────────────────────────────

class IncomeTypeSummary(BaseModel):
    incomeType: str
    grossAmount: float
    withholdingAmount: float


class IncomeSummary(BaseModel):
    byType: List[IncomeTypeSummary]
    thaiGrossTotal: float
    thaiWithholdingTotal: float
    foreignIncomeTotal: float
    taxableForeignIncome: float
    nonTaxableForeignIncome: float
    employmentIncome: float = Field(0.0, description="Company owner salary + fees + benefits")
    includedDividendIncome: float = 0.0
    excludedDividendIncome: float = 0.0
    dividendWithholdingCredit: float = 0.0
    grossIncome: float


# ── 6. Obligations ────────────────────────────────────────────────────────

class PND94Result(BaseModel):
    required: bool
    halfYearIncome: float
    threshold: float
    provisionalTax: float
    dueDate: str
    summary: str = ""


class VATResult(BaseModel):
    required: bool
    turnover: float
    threshold: float
    mustRegisterWithinDays: int
    thresholdCrossedMonth: Optional[int] = Field(
        None, description="Month the dated turnover first reached the threshold"
    )
    summary: str = ""


class ObligationCheckResult(BaseModel):
    pnd94: PND94Result
    vat: VATResult
    hasAnyObligation: bool
    urgentItems: List[str]


# ── 7. Final result ───────────────────────────────────────────────────────

class DividendAdvice(BaseModel):
    totalDividendIncome: float
    taxableDividends: float
    dividendTaxCredit: float
    dividendExclusionSavings: float = Field(
        ..., description="Tax saved by excluding all Thai dividends (negative = including saves)"
    )
    optimalDividendStrategy: Literal["include", "exclude"]


class TaxResult(BaseModel):
    employmentType: str
    grossIncome: float
    thaiIncomeTotal: float
    foreignIncomeTotal: float
    taxableForeignIncome: float

    expenseMethod: Optional[ExpenseMethod] = None
    expenseDeduction: float
    totalAllowances: float
    totalDeductions: float = Field(..., description="Expense deduction + other deductions")
    taxableIncome: float

    grossTaxBeforeCredits: float
    ltrFlatRateTax: float = 0.0
    withholdingCredits: float
    dividendCredits: float = 0.0
    foreignTaxCredits: float
    totalCredits: float
    netTaxPayable: float
    refundDue: float
    effectiveRate: float = Field(..., description="grossTax / grossIncome (ratio)")

    allowances: AllowanceBreakdown
    deductions: DeductionBreakdown
    bracketBreakdown: List[BracketSlice]
    incomeByType: List[IncomeTypeSummary] = Field(default_factory=list)
    expenseComparison: Optional[ExpenseComparisonResult] = None
    foreignIncome: Optional[ForeignIncomeAnalysis] = None
    obligations: Optional[ObligationCheckResult] = None
    dividendAdvice: Optional[DividendAdvice] = None
    ltrBenefitApplied: bool = False


# ══════════════════════════════════════════════════════════════════════════
# Monthly withholding estimate
# ══════════════════════════════════════════════════════════════════════════

class MonthlyIncomeEntry(BaseModel):
    salary: Amount = 0.0
    bonus: Amount = 0.0
    housingAllowance: Amount = 0.0
    otherIncome: Amount = 0.0


class MonthlyWithholdingRequest(TaxpayerBase):
    estimateType: Literal["basic", "detailed"] = "basic"
    incomeType: Literal["fixed", "variable"] = "fixed"
    monthlySalary: Amount = 0.0
    annualBonus: Amount = 0.0
    annualOtherIncome: Amount = 0.0
    variableIncome: List[MonthlyIncomeEntry] = Field(default_factory=list)


class MonthlyWithholdingResult(BaseModel):
    annualIncome: float
    standardDeduction: float
    personalAllowance: float
    socialSecurity: float
    totalDeductions: float
    taxableIncome: float
    annualTax: float
    monthlyWithholding: float
    effectiveRate: float


# ══════════════════════════════════════════════════════════════════════════
# API requests
# ══════════════════════════════════════════════════════════════════════════

class TaxCalculationRequest(BaseModel):
    formData: TaxForm


class BracketRequest(BaseModel):
    taxableIncome: float = Field(..., description="Taxable income in THB (may be ≤ 0)")


class BracketResponse(BaseModel):
    taxableIncome: float
    tax: float
    marginalRate: float
    breakdown: List[BracketSlice]


class ExpenseCompareRequest(BaseModel):
    thaiIncomeEntries: List[ThaiIncomeEntry] = Field(default_factory=list)
    actualExpenses: List[ExpenseEntry] = Field(default_factory=list)
    expenseMethod: ExpenseMethodChoice = ExpenseMethod.AUTO_COMPARE
    liberalProfessionSubType: Optional[str] = None
    taxableIncome: Optional[float] = Field(
        None, description="Taxable income for the savings estimate (default: gross − deduction)"
    )


class ForeignIncomeRequest(BaseModel):
    foreignIncomeEntries: List[ForeignIncomeEntry] = Field(default_factory=list)
    daysInThailand: Days = 0
    visaType: VisaTypeChoice = VisaType.REGULAR


class ObligationRequest(BaseModel):
    thaiIncomeEntries: List[ThaiIncomeEntry] = Field(default_factory=list)
    maritalStatus: MaritalStatus = ""
    spouseHasNoIncome: Flag = False


class SessionSnapshot(BaseModel):
    formData: Optional[TaxForm] = None
    currentStep: int = Field(0, ge=0)
