"""Contract Wizard Workflow.

Section sequencing for the contract authoring wizard.  The sections form a
linear chain: ``next`` moves forward and is guarded on the two sections that
define completion criteria, ``previous`` moves back unconditionally.  There
is no terminal state; the session ends externally on save or cancel.
"""

from dataclasses import dataclass

from trade_kernel.domain.workflow import Guard, Transition, Workflow


@dataclass(frozen=True)
class Section:
    id: str
    label: str


BASIC_INFO = "basic-info"
INCOTERM = "incoterm"

SECTIONS: tuple[Section, ...] = (
    Section(BASIC_INFO, "Información Básica/Cantidad/Plazo"),
    Section(INCOTERM, "Incoterm Entrega"),
    Section("rollback", "Rollback"),
    Section("quality", "Calidad / Granulometría"),
    Section("payables", "Pagables"),
    Section("processing", "Maquila"),
    Section("processing-escalator", "Escalador en Maquila"),
    Section("refining", "Gastos de Refinación"),
    Section("refining-escalator", "Escalador en Gastos de Refinación"),
    Section("penalties", "Penalidades"),
    Section("payments", "Pagos"),
    Section("quotation-period", "Periodo de Cotizaciones"),
    Section("weight-sampling", "Muestreo Pesos"),
    Section("assay-sampling", "Muestreo Ensayes"),
    Section("waste", "Merma"),
)

SECTION_IDS: tuple[str, ...] = tuple(s.id for s in SECTIONS)


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

BASIC_INFO_COMPLETE_GUARD = Guard(
    name="basic_info_complete",
    description=(
        "Contract type, vendor, buyer, product and country selected, "
        "both delivery months set and at least one quota present"
    ),
)

INCOTERM_COMPLETE_GUARD = Guard(
    name="incoterm_complete",
    description="Incoterm selected and delivery location not blank",
)

SECTION_GUARDS: dict[str, Guard] = {
    BASIC_INFO: BASIC_INFO_COMPLETE_GUARD,
    INCOTERM: INCOTERM_COMPLETE_GUARD,
}


def _section_transitions() -> tuple[Transition, ...]:
    transitions: list[Transition] = []
    for current, following in zip(SECTION_IDS, SECTION_IDS[1:]):
        transitions.append(
            Transition(current, following, action="next", guard=SECTION_GUARDS.get(current))
        )
        transitions.append(Transition(following, current, action="previous"))
    return tuple(transitions)


CONTRACT_WIZARD_WORKFLOW = Workflow(
    name="contract_wizard",
    description="Section sequencing for contract authoring",
    initial_state=SECTION_IDS[0],
    states=SECTION_IDS,
    transitions=_section_transitions(),
)
