from .profile import (
    BirthQuery,
    GeoDetails,
    ChartSettings,
    ChartRequestPayload,
    PlanetRecord,
    AstroProfile,
    ProfileResolveRequest,
)
from .insights import (
    GenerationState,
    AscendantAnalysis,
    MoonAnalysis,
    LifePhaseAnalysis,
    LifeArea,
    EnergyArea,
    LifeAreas,
    InsightResult,
    InsightResponse,
)
from .session import BirthPrecision, LiveLocation, SubjectContext, SessionProfile
from .advisor import AdvisorRequest, AdvisorResponse
