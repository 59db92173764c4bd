"""
Pre-Mutation Validation

DESIGN DECISION: Every mutation is validated BEFORE any store is touched.
A rejected action leaves no partial state behind.

Two kinds of checks:

STRUCTURAL:
- Amounts must be positive
- Required names present
- Credit terms sane, budget line ids resolvable

AFFORDABILITY:
- Money leaving the liquid wallet (goal/fund deposits, credit payments,
  internal capital injections) must not exceed the current balance
- Budget lines may not allocate more than the project actually received

Affordability failures raise InsufficientFundsError so callers can show
both amounts; everything else raises ValidationFailedError with the full
ValidationResult.

IMPORTANT: Validation NEVER silently fixes issues. Warnings are reported
but do not block.
"""

from typing import Optional

from vaultly.engine.projects import unallocated_funds
from vaultly.models.records import Credit, CreditStatus, Project, ProjectTransaction, TransactionType
from vaultly.models.validation import ValidationIssue, ValidationResult
from vaultly.utils.money import to_cents


class ValidationFailedError(Exception):
    """A requested mutation failed validation."""

    def __init__(self, result: ValidationResult):
        self.result = result
        first = result.first_error()
        super().__init__(first.message if first else f"Validation failed for {result.action}")


class InsufficientFundsError(ValidationFailedError):
    """The current balance cannot cover an outgoing amount."""

    def __init__(self, action: str, available: float, needed: float):
        self.action = action
        self.available = available
        self.needed = needed
        message = f"insufficient funds: available {available:.2f}, needed {needed:.2f}"
        result = ValidationResult(
            action=action,
            issues=[ValidationIssue(
                field="amount",
                issue_type="insufficient_funds",
                message=message,
                severity="error",
                suggested_fix=f"Reduce the amount to at most {max(0.0, available):.2f}",
            )],
        )
        super().__init__(result)


class FinanceValidator:
    """Validates requested mutations against the current state."""

    def _amount_issues(self, amount: float, field: str = "amount") -> list[ValidationIssue]:
        if amount is None or to_cents(amount) <= 0:
            return [ValidationIssue(
                field=field,
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
                suggested_fix="Enter a positive amount",
            )]
        return []

    def validate_amount(self, action: str, amount: float) -> ValidationResult:
        return ValidationResult(action=action, issues=self._amount_issues(amount))

    def validate_transaction(
        self,
        amount: float,
        category: str,
        description: str,
    ) -> ValidationResult:
        """
        Wallet transaction checks.

        A blank category is allowed (it is reported as 'Sin Categoría') but
        flagged as a warning.
        """
        issues = self._amount_issues(amount)
        if not category or not category.strip():
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Transaction has no category",
                severity="warning",
                suggested_fix="Pick a category so reports can group it",
            ))
        if not description or not description.strip():
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Transaction has no description",
                severity="warning",
            ))
        return ValidationResult(action="add_transaction", issues=issues)

    def validate_withdrawal(self, action: str, amount: float, saved: float) -> ValidationResult:
        """Withdrawals beyond the saved amount are allowed; the total floors at 0."""
        issues = self._amount_issues(amount)
        if not issues and to_cents(amount) > to_cents(saved):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="exceeds_saved",
                message=f"Withdrawal of {amount:.2f} exceeds the {saved:.2f} saved",
                severity="warning",
                suggested_fix="The saved amount will be set to zero",
            ))
        return ValidationResult(action=action, issues=issues)

    def validate_credit(
        self,
        name: str,
        principal: float,
        interest_rate: float,
        term: int,
    ) -> ValidationResult:
        issues = self._amount_issues(principal, field="principal")
        if not name or not name.strip():
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Credit name is required",
                severity="error",
            ))
        if interest_rate is None or interest_rate < 0:
            issues.append(ValidationIssue(
                field="interest_rate",
                issue_type="invalid_value",
                message="Interest rate cannot be negative",
                severity="error",
            ))
        if term is None or term < 1:
            issues.append(ValidationIssue(
                field="term",
                issue_type="invalid_value",
                message="Term must be at least one month",
                severity="error",
            ))
        return ValidationResult(action="create_credit", issues=issues)

    def validate_credit_payment(self, credit: Credit, amount: float) -> ValidationResult:
        issues = self._amount_issues(amount)
        if credit.status == CreditStatus.PAID:
            issues.append(ValidationIssue(
                field="status",
                issue_type="already_paid",
                message=f"Credit '{credit.name}' is already paid off",
                severity="warning",
            ))
        return ValidationResult(action="credit_payment", issues=issues)

    def validate_project_transaction(
        self,
        project: Project,
        transaction: ProjectTransaction,
    ) -> ValidationResult:
        issues = self._amount_issues(transaction.amount)
        if transaction.type == TransactionType.INCOME and transaction.funding_source is None:
            issues.append(ValidationIssue(
                field="funding_source",
                issue_type="missing",
                message="Project income has no funding source; treated as external",
                severity="info",
            ))
        if (
            transaction.budget_line_id is not None
            and project.find_budget_line(transaction.budget_line_id) is None
        ):
            issues.append(ValidationIssue(
                field="budget_line_id",
                issue_type="not_found",
                message=f"Budget line not found: {transaction.budget_line_id}",
                severity="error",
            ))
        return ValidationResult(action="project_transaction", issues=issues)

    def validate_budget_line(
        self,
        project: Project,
        name: str,
        allocated_amount: float,
        line_id: Optional[str] = None,
    ) -> ValidationResult:
        """
        A budget line may only allocate funds the project already received.

        `line_id` excludes an existing line's own allocation when editing it.
        """
        issues = []
        if not name or not name.strip():
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Budget line name is required",
                severity="error",
            ))
        if allocated_amount is None or allocated_amount < 0:
            issues.append(ValidationIssue(
                field="allocated_amount",
                issue_type="invalid_value",
                message="Allocated amount cannot be negative",
                severity="error",
            ))
        else:
            available = unallocated_funds(project, excluding=line_id)
            if to_cents(allocated_amount) > to_cents(available):
                issues.append(ValidationIssue(
                    field="allocated_amount",
                    issue_type="over_allocation",
                    message=(
                        f"Cannot allocate {allocated_amount:.2f}: only "
                        f"{available:.2f} of received funds is unallocated"
                    ),
                    severity="error",
                    suggested_fix="Inject more capital into the project first",
                ))
        return ValidationResult(action="create_budget_line", issues=issues)

    def ensure_affordable(self, action: str, amount: float, available: float) -> None:
        """
        Raise InsufficientFundsError if `amount` exceeds `available`.

        Compared in cents, so an amount equal to the balance is allowed.
        """
        if to_cents(amount) > to_cents(available):
            raise InsufficientFundsError(action, available, amount)

    @staticmethod
    def raise_for(result: ValidationResult) -> ValidationResult:
        """Raise ValidationFailedError if the result has errors, else return it."""
        if result.has_errors:
            raise ValidationFailedError(result)
        return result
