"""Pydantic schemas, constants, and static sentence data for Tingli."""
from typing import Literal, Optional, List
from pydantic import BaseModel, Field

# --- Constants ---
Difficulty = Literal["beginner", "intermediate", "advanced"]
DIFFICULTIES = ("beginner", "intermediate", "advanced")

# --- Pydantic Models ---

class WordPayload(BaseModel):
    chinese: str
    pinyin: str
    english: str
    active: bool = True


class AddWordsRequest(BaseModel):
    words: List[WordPayload]


class WordUpdate(BaseModel):
    chinese: Optional[str] = None
    pinyin: Optional[str] = None
    english: Optional[str] = None
    active: Optional[bool] = None


class DeleteByChineseRequest(BaseModel):
    chinese: str


class ProficiencyUpdate(BaseModel):
    isCorrect: bool


class GenerateSentenceRequest(BaseModel):
    difficulty: Optional[Difficulty] = None
    session_id: Optional[str] = None


class WordSentenceRequest(BaseModel):
    word: str
    difficulty: Difficulty = "beginner"


class SynonymCheckRequest(BaseModel):
    word1: str
    word2: str


class PinyinRequest(BaseModel):
    text: str


class PracticeInputRequest(BaseModel):
    session_id: str
    sentence_id: str
    answer: str = ""


class PracticeSessionRequest(BaseModel):
    session_id: str


class PracticeNextRequest(BaseModel):
    session_id: str
    difficulty: Optional[Difficulty] = None


class VoicePayload(BaseModel):
    voice_uri: str
    name: str = ""
    lang: str = ""


class SpeechPlanRequest(BaseModel):
    text: str
    voices: List[VoicePayload] = Field(default_factory=list)


# --- Static Data ---

# Pre-vetted sentences served when generation fails, one pool per tier
FALLBACK_SENTENCES = {
    "beginner": [
        {"chinese": "我很好。", "pinyin": "Wǒ hěn hǎo.", "english": "I am very well."},
        {"chinese": "你好吗？", "pinyin": "Nǐ hǎo ma?", "english": "How are you?"},
        {"chinese": "请喝水。", "pinyin": "Qǐng hē shuǐ.", "english": "Please drink water."},
        {"chinese": "谢谢你。", "pinyin": "Xièxiè nǐ.", "english": "Thank you."},
        {"chinese": "我喜欢。", "pinyin": "Wǒ xǐhuān.", "english": "I like it."},
        {"chinese": "你吃了吗？", "pinyin": "Nǐ chī le ma?", "english": "Have you eaten?"},
        {"chinese": "我不知道。", "pinyin": "Wǒ bù zhīdào.", "english": "I don't know."},
        {"chinese": "再见。", "pinyin": "Zàijiàn.", "english": "Goodbye."},
    ],
    "intermediate": [
        {"chinese": "这本书很有意思。", "pinyin": "Zhè běn shū hěn yǒuyìsi.", "english": "This book is very interesting."},
        {"chinese": "中国菜很好吃。", "pinyin": "Zhōngguó cài hěn hǎochī.", "english": "Chinese food is delicious."},
        {"chinese": "你能帮我吗？", "pinyin": "Nǐ néng bāng wǒ ma?", "english": "Can you help me?"},
        {"chinese": "我在学校。", "pinyin": "Wǒ zài xuéxiào.", "english": "I am at school."},
        {"chinese": "我们明天见。", "pinyin": "Wǒmen míngtiān jiàn.", "english": "See you tomorrow."},
        {"chinese": "我认为很好。", "pinyin": "Wǒ rènwéi hěn hǎo.", "english": "I think it's very good."},
    ],
    "advanced": [
        {"chinese": "我认为学习语言很重要。", "pinyin": "Wǒ rènwéi xuéxí yǔyán hěn zhòngyào.", "english": "I think learning languages is important."},
        {"chinese": "虽然很难，但是很有用。", "pinyin": "Suīrán hěn nán, dànshì hěn yǒuyòng.", "english": "Although it's difficult, it's very useful."},
        {"chinese": "今天我们学了新的单词。", "pinyin": "Jīntiān wǒmen xué le xīn de dāncí.", "english": "Today we learned new words."},
        {"chinese": "下次我会做得更好。", "pinyin": "Xià cì wǒ huì zuò de gèng hǎo.", "english": "Next time I will do better."},
    ],
}

# Templates for a sentence around one word; {word} is the Chinese word
WORD_TEMPLATES = [
    {"template": "我喜欢{word}。", "english": "I like {word}.", "pinyin": "Wǒ xǐhuān {word}."},
    {"template": "这是{word}。", "english": "This is {word}.", "pinyin": "Zhè shì {word}."},
    {"template": "我有{word}。", "english": "I have {word}.", "pinyin": "Wǒ yǒu {word}."},
    {"template": "我想要{word}。", "english": "I want {word}.", "pinyin": "Wǒ xiǎng yào {word}."},
    {"template": "{word}很好。", "english": "{word} is good.", "pinyin": "{word} hěn hǎo."},
    {"template": "我们学习{word}。", "english": "We learn {word}.", "pinyin": "Wǒmen xuéxí {word}."},
    {"template": "我买了{word}。", "english": "I bought {word}.", "pinyin": "Wǒ mǎi le {word}."},
    {"template": "我看了{word}。", "english": "I saw {word}.", "pinyin": "Wǒ kàn le {word}."},
    {"template": "我们用了{word}。", "english": "We used {word}.", "pinyin": "Wǒmen yòng le {word}."},
    {"template": "我学了{word}。", "english": "I learned {word}.", "pinyin": "Wǒ xué le {word}."},
    {"template": "我昨天去了{word}。", "english": "I went to {word} yesterday.", "pinyin": "Wǒ zuótiān qù le {word}."},
    {"template": "明天我要去{word}。", "english": "Tomorrow I will go to {word}.", "pinyin": "Míngtiān wǒ yào qù {word}."},
    {"template": "我会学习{word}。", "english": "I will study {word}.", "pinyin": "Wǒ huì xuéxí {word}."},
    {"template": "我想看{word}。", "english": "I want to see {word}.", "pinyin": "Wǒ xiǎng kàn {word}."},
]

# Particles and everyday characters allowed in a sentence regardless of vocabulary
COMMON_CHINESE_CHARS = set(
    "的了和是在有我你他她它们这那不很都也个吗吧呢啊就说能要会对给到得着过被"
    "上下前后里外左右中大小多少好与为因"
)
