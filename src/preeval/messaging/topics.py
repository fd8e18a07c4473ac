"""Topic names exchanged over the message bus."""

from __future__ import annotations


class Topics:
    """Downstream topics requested by the gateway."""

    AFFILIATE_FIND_ONE = "affiliate.findOneData"
    MODALITIES_FIND_ALL = "procedureModalities.findAll"
    MODALITIES_FIND_ONE = "procedureModalities.findOne"
    MODULES_FIND_RELATIONS = "modules.findDataRelations"
    LOAN_PARAMETERS_BATCH = "loanModalityParameters.findByProcedureModalityIdsWithEnabledLoanProcedure"
    LOAN_INTERESTS = "loanInterests.findByProcedureModality"
    PERSON_ID_BY_AFFILIATE = "person.getPersonIdByAffiliate"
    PERSON_FIND_ONE = "person.findOne"
    PENSION_ENTITY_FIND_ONE = "pensionEntities.findOne"
    RETIREMENT_FUND_AVERAGE = "retirementFundAverages.findByDegreeAndCategory"
    CONTRIBUTIONS_BY_AFFILIATE = "Contributions.findByAffiliateId"


class InboundTopics:
    """Topics the gateway itself answers."""

    AFFILIATE_INFO = "preEvaluation.affiliateInfo"
    LOAN_MODALITIES = "preEvaluation.loanModalities"
    LOAN_DOCUMENTS = "preEvaluation.loanDocuments"
    RECENT_CONTRIBUTIONS = "preEvaluation.recentContributions"
    RETIREMENT_FUND_AVERAGE = "preEvaluation.retirementFundAverage"

    ALL = (
        AFFILIATE_INFO,
        LOAN_MODALITIES,
        LOAN_DOCUMENTS,
        RECENT_CONTRIBUTIONS,
        RETIREMENT_FUND_AVERAGE,
    )
