"""
Fixed legal text shared by the document layouts.

DATA_PROTECTION_CLAUSE is printed before the signatures of contracts and
deposit agreements; DATA_PROTECTION_NOTICE is the short form used on
proformas. deposit_clauses() fills the deposit agreement stipulations with
the agreement's own figures.
"""

from __future__ import annotations

from typing import Tuple

DATA_PROTECTION_CLAUSE: Tuple[str, ...] = (
    "In accordance with Regulation (EU) 2016/679 (GDPR) and Organic Law 3/2018 on the Protection of "
    "Personal Data and guarantee of digital rights (LOPDGDD), the buyer is informed of the following:",
    "CONTROLLER: the personal data controller is the selling company identified in this document.",
    "PURPOSE: the data provided is processed to manage the contractual relationship arising from the "
    "sale of the vehicle, including invoicing, warranty management, after-sales communications and "
    "compliance with legal obligations.",
    "LEGAL BASIS: performance of this contract and compliance with the applicable tax, commercial and "
    "traffic regulations.",
    "RETENTION: the data is kept for as long as needed for that purpose and to determine any liability "
    "arising from it, subject to the rules on records and documentation.",
    "RECIPIENTS: competent public administrations where required by law; financial institutions when "
    "the purchase is financed; insurers when an extended warranty is taken out; processors providing "
    "services to the controller.",
    "RIGHTS: access, rectification, erasure, restriction, portability and objection may be exercised in "
    "writing at the controller's address or by email, enclosing a copy of an identity document. A "
    "complaint may be lodged with the Spanish Data Protection Agency (www.aepd.es).",
    "CONSENT: by signing this document the buyer declares to have been informed of the above and "
    "expressly consents to the processing of their personal data for the stated purposes.",
)

DATA_PROTECTION_NOTICE = (
    "DATA PROTECTION: in accordance with the GDPR and the LOPDGDD, your data will be processed to manage "
    "the relationship arising from this document. You may exercise your rights of access, rectification, "
    "erasure, restriction, portability and objection before the controller."
)

FORMALISATION_BUSINESS_DAYS = 5


def deposit_clauses(*, deposit: str, total: str, remaining: str, deadline: str) -> Tuple[str, ...]:
    """Stipulations of a deposit agreement, with the amounts already formatted."""

    return (
        "FIRST. OBJECT. The buyer reserves the vehicle described above, which the seller withdraws from "
        "sale until the deadline stated below.",
        f"SECOND. DEPOSIT. The buyer pays {deposit} as a deposit on account of the total price of {total}. "
        f"The remaining {remaining} is paid when the sale is formalised.",
        f"THIRD. VALIDITY. This reservation is valid until {deadline}. If the sale has not been formalised by "
        "then for reasons attributable to the buyer, the reservation lapses.",
        "FOURTH. PENALTIES. If the buyer withdraws, the deposit is forfeited to the seller. If the seller "
        "withdraws, the seller returns twice the deposit received.",
        f"FIFTH. FORMALISATION. The sale contract is signed within {FORMALISATION_BUSINESS_DAYS} business days "
        "of the buyer's request, and in any case before the deadline.",
    )


__all__ = [
    "DATA_PROTECTION_CLAUSE",
    "DATA_PROTECTION_NOTICE",
    "FORMALISATION_BUSINESS_DAYS",
    "deposit_clauses",
]
