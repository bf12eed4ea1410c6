from datetime import datetime
from enum import Enum
from typing import Optional, List, Union
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


# Inclusive ceiling for target_word_count.
MAX_TARGET_WORD_COUNT = 20000


def _alias(*names: str) -> AliasChoices:
    return AliasChoices(*names)


class GenerationKind(str, Enum):
    CHAPTER = "chapter"
    SCENE = "scene"
    CHARACTER_DESCRIPTION = "character_description"
    DIALOGUE = "dialogue"
    REVISION = "revision"


class CharacterRole(str, Enum):
    PROTAGONIST = "protagonist"
    ANTAGONIST = "antagonist"
    SUPPORTING = "supporting"
    MINOR = "minor"


class Perspective(str, Enum):
    FIRST_PERSON = "first_person"
    SECOND_PERSON = "second_person"
    THIRD_PERSON_LIMITED = "third_person_limited"
    THIRD_PERSON_OMNISCIENT = "third_person_omniscient"


class Tense(str, Enum):
    PAST = "past"
    PRESENT = "present"
    FUTURE = "future"


class DescriptionLevel(str, Enum):
    MINIMAL = "minimal"
    MODERATE = "moderate"
    DETAILED = "detailed"


class Pacing(str, Enum):
    FAST = "fast"
    MEDIUM = "medium"
    SLOW = "slow"


class ContentTone(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    TENSE = "tense"
    NEUTRAL = "neutral"


class TaskStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


# Enumerated settings are kept as plain strings: values outside the known
# sets are accepted and rendered verbatim by the prompt builder.
class GenerationSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    style: str = ""
    tone: str = ""
    perspective: str = Perspective.THIRD_PERSON_LIMITED.value
    tense: str = Tense.PAST.value
    target_word_count: int = Field(
        default=1000,
        gt=0,
        le=MAX_TARGET_WORD_COUNT,
        validation_alias=_alias("targetWordCount", "target_word_count", "target_words"),
    )
    description_level: str = Field(
        default=DescriptionLevel.MODERATE.value,
        validation_alias=_alias("descriptionLevel", "description_level"),
    )
    pacing: str = Pacing.MEDIUM.value
    include_dialogue: bool = Field(
        default=True,
        validation_alias=_alias("includeDialogue", "include_dialogue"),
    )
    focus_elements: List[str] = Field(
        default_factory=list,
        validation_alias=_alias("focusElements", "focus_elements"),
    )


class Character(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    name: str
    role: str = CharacterRole.SUPPORTING.value
    age: Optional[int] = None
    gender: Optional[str] = None
    appearance: str = ""
    personality: str = ""
    background: str = ""
    goals: str = ""
    current_status: str = Field(default="", validation_alias=_alias("currentStatus", "current_status"))
    skills: List[str] = Field(default_factory=list)


class WorldSetting(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    description: str = ""
    era: str = ""
    technology_level: str = Field(default="", validation_alias=_alias("technologyLevel", "technology_level"))
    magic_system: Optional[str] = Field(default=None, validation_alias=_alias("magicSystem", "magic_system"))
    geography: str = ""
    politics: str = ""
    economy: str = ""
    culture: str = ""
    history: str = ""


class TargetScene(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = ""
    description: str = ""
    location: str = ""
    time: str = ""
    purpose: str = ""
    mood: str = ""
    conflicts: List[str] = Field(default_factory=list)
    outcomes: List[str] = Field(default_factory=list)
    characters: List[str] = Field(default_factory=list)


class NarrativeContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    project_id: str = Field(default="", validation_alias=_alias("projectId", "project_id"))
    characters: List[Character] = Field(default_factory=list)
    world_setting: Optional[WorldSetting] = Field(
        default=None,
        validation_alias=_alias("worldSetting", "world_setting"),
    )
    previous_chapters: List[str] = Field(
        default_factory=list,
        validation_alias=_alias("previousChapters", "previous_chapters"),
    )
    target_scene: Optional[TargetScene] = Field(
        default=None,
        validation_alias=_alias("targetScene", "target_scene"),
    )
    custom_instructions: Optional[str] = Field(
        default=None,
        validation_alias=_alias("customInstructions", "custom_instructions"),
    )


class GenerationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: str = Field(validation_alias=_alias("kind", "type"))
    settings: GenerationSettings
    context: NarrativeContext
    source_content: Optional[str] = Field(
        default=None,
        validation_alias=_alias("sourceContent", "source_content", "content"),
    )
    timestamp: Optional[Union[int, float, str]] = None

    @model_validator(mode="after")
    def check_kind_and_source(self) -> "GenerationRequest":
        known = {kind.value for kind in GenerationKind}
        if self.kind not in known:
            raise ValueError(f"unsupported generation kind: {self.kind}")
        if self.kind == GenerationKind.REVISION.value and not (self.source_content or "").strip():
            raise ValueError("revision requests require sourceContent")
        return self


class ContentTags(BaseModel):
    key_elements: List[str] = Field(default_factory=list)
    tone: str = ContentTone.NEUTRAL.value


class ContentMetadata(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    word_count: int = Field(default=0, ge=0)
    estimated_reading_time: int = Field(default=0, ge=0)
    key_elements: List[str] = Field(default_factory=list)
    tone: str = ContentTone.NEUTRAL.value
    sentence_count: int = Field(default=0, ge=0)
    paragraph_count: int = Field(default=0, ge=0)
    used_fallback: bool = False


class StyleCharacteristics(BaseModel):
    model_config = ConfigDict(frozen=True)

    vocabulary_level: str = "moderate"
    sentence_structure: str = "varied"
    descriptive_style: str = "balanced"
    dialogue_style: str = "casual"
    narrative_voice: str = "intimate"


class StyleTemplate(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    name: str
    description: str = ""
    sample_text: str = Field(default="", validation_alias=_alias("sampleText", "sample_text"))
    characteristics: StyleCharacteristics = Field(default_factory=StyleCharacteristics)
    genre_tags: List[str] = Field(default_factory=list, validation_alias=_alias("genreTags", "genre_tags"))


class GenerationTask(BaseModel):
    id: str
    kind: str
    status: TaskStatus = TaskStatus.COMPLETED
    project_id: str = ""
    word_count: int = 0
    tone: str = ContentTone.NEUTRAL.value
    used_fallback: bool = False
    client_timestamp: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
