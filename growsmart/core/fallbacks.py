from __future__ import annotations

from types import MappingProxyType

from growsmart.core.rules import Rule, first_match
from growsmart.core.schemas import UserContext


DEFAULT_LANGUAGE = "english"

LANGUAGE_ALIASES = MappingProxyType({
    "en": "english",
    "hi": "hindi",
    "ta": "tamil",
    "bn": "bengali",
    "te": "telugu",
    "kn": "kannada",
    "mr": "marathi",
    "gu": "gujarati",
    "pa": "punjabi",
    "ml": "malayalam",
    "es": "spanish",
    "pt": "portuguese",
    "ja": "japanese",
    "id": "indonesian",
})


def normalize_language(language: str | None) -> str:
    tag = (language or "").strip().lower()
    if not tag:
        return DEFAULT_LANGUAGE
    # "en-US" / "hi_IN" -> primary subtag
    primary = tag.replace("_", "-").split("-", 1)[0]
    return LANGUAGE_ALIASES.get(primary, LANGUAGE_ALIASES.get(tag, tag))


# ---- Upstream system prompts ----
LANGUAGE_PROMPTS = MappingProxyType({
    "tamil": "நீங்கள் ஒரு தமிழ் விவசாய நிபுணர். விவசாயிகளுக்கு தமிழில் மட்டுமே பதில் அளிக்கவும். உங்கள் பதில்கள் எளிமையாகவும், புரிந்துகொள்ளக்கூடியதாகவும், நடைமுறை ரீதியாகவும் இருக்க வேண்டும்.",
    "hindi": "आप एक हिंदी कृषि विशेषज्ञ हैं। किसानों को केवल हिंदी में उत्तर दें। आपके उत्तर सरल, समझने योग्य और व्यावहारिक होने चाहिए।",
    "bengali": "আপনি একজন বাংলা কৃষি বিশেষজ্ঞ। কৃষকদের শুধুমাত্র বাংলায় উত্তর দিন। আপনার উত্তরগুলো সহজ, বোধগম্য এবং ব্যবহারিক হতে হবে।",
    "telugu": "మీరు తెలుగు వ్యవసాయ నిపుణుడు. రైతులకు తెలుగులో మాత్రమే సమాధానం ఇవ్వండి. మీ సమాధానాలు సరళంగా, అర్థమయ్యేలా మరియు ఆచరణాత్మకంగా ఉండాలి.",
    "kannada": "ನೀವು ಕನ್ನಡ ಕೃಷಿ ತಜ್ಞರು. ರೈತರಿಗೆ ಕೇವಲ ಕನ್ನಡದಲ್ಲಿ ಮಾತ್ರ ಉತ್ತರಿಸಿ. ನಿಮ್ಮ ಉತ್ತರಗಳು ಸರಳ, ಅರ್ಥವಾಗುವ ಮತ್ತು ಪ್ರಾಯೋಗಿಕವಾಗಿರಬೇಕು.",
    "marathi": "तुम्ही मराठी शेती तज्ञ आहात. शेतकऱ्यांना फक्त मराठीत उत्तर द्या. तुमची उत्तरे सोपी, समजण्यासारखी आणि व्यावहारिक असावीत.",
    "gujarati": "તમે ગુજરાતી કૃષિ નિષ્ણાત છો. ખેડૂતોને માત્ર ગુજરાતીમાં જ જવાબ આપો. તમારા જવાબો સરળ, સમજી શકાય તેવા અને વ્યવહારિક હોવા જોઈએ.",
    "punjabi": "ਤੁਸੀਂ ਪੰਜਾਬੀ ਖੇਤੀ ਮਾਹਰ ਹੋ। ਕਿਸਾਨਾਂ ਨੂੰ ਸਿਰਫ਼ ਪੰਜਾਬੀ ਵਿੱਚ ਜਵਾਬ ਦਿਓ। ਤੁਹਾਡੇ ਜਵਾਬ ਸਰਲ, ਸਮਝਣ ਯੋਗ ਅਤੇ ਵਿਹਾਰਕ ਹੋਣੇ ਚਾਹੀਦੇ ਹਨ।",
    "malayalam": "നിങ്ങൾ ഒരു മലയാളം കൃഷി വിദഗ്ധനാണ്. കർഷകർക്ക് മലയാളത്തിൽ മാത്രം ഉത്തരം നൽകുക. നിങ്ങളുടെ ഉത്തരങ്ങൾ ലളിതവും മനസ്സിലാക്കാവുന്നതും പ്രായോഗികവുമായിരിക്കണം.",
    "spanish": "Eres un experto agrícola en español. Responde a los agricultores solo en español. Tus respuestas deben ser simples, comprensibles y prácticas.",
    "portuguese": "Você é um especialista agrícola em português. Responda aos agricultores apenas em português. Suas respostas devem ser simples, compreensíveis e práticas.",
    "japanese": "あなたは日本の農業専門家です。農家には日本語でのみ回答してください。あなたの回答は簡潔で理解しやすく実用的である必要があります。",
    "indonesian": "Anda adalah ahli pertanian Indonesia. Jawab petani hanya dalam bahasa Indonesia. Jawaban Anda harus sederhana, mudah dipahami, dan praktis.",
    "english": "You are an agricultural expert. Respond to farmers in English. Your answers should be simple, understandable, and practical.",
})

EXPERT_BRIEF = (
    "Always respond in the native language of the user. You are a knowledgeable agricultural expert "
    "with expertise in modern farming techniques, crop management, pest control, irrigation, soil health, "
    "and sustainable agriculture practices. Provide practical, actionable advice that farmers can "
    "implement immediately."
)


def system_prompt(language: str) -> str:
    base = LANGUAGE_PROMPTS.get(language, LANGUAGE_PROMPTS[DEFAULT_LANGUAGE])
    return f"{base} {EXPERT_BRIEF}"


# ---- Free-form chat prompt ----
NOT_SPECIFIED = "Not specified"

CHAT_BRIEF = """You are an expert agricultural AI assistant with deep knowledge of farming, agriculture, and sustainable practices. You provide comprehensive, well-structured responses that are both informative and practical.

USER CONTEXT: {context}

RESPONSE GUIDELINES:
1. **Structure your responses clearly** with emojis, headings, and sections
2. **Be comprehensive** - cover multiple aspects of the topic (origin, cultivation, varieties, challenges, etc.)
3. **Use markdown formatting** with **bold text**, bullet points, and proper sections
4. **Include relevant emojis** to make content engaging (🌱🌾🦠🌡️💰🍌🥕 etc.)
5. **Provide practical advice** that farmers can actually implement
6. **Cover multiple angles**: scientific facts, practical tips, common challenges, solutions
7. **Be encouraging and supportive** in your tone

EXAMPLE STRUCTURE:
🌱 **Topic Introduction** with key insight

**📍 Origin/Background**
- Key historical or scientific information

**🌾 Cultivation Requirements**
- Climate, soil, water needs
- Best practices

**🍃 Varieties/Types**
- Different options available
- Pros and cons of each

**💡 Pro Tips**
- Expert advice and best practices

**⚠️ Common Challenges**
- Issues farmers face and solutions

**💰 Economic Considerations**
- Market insights, profitability tips

Always aim to be the most helpful, knowledgeable agricultural advisor possible. Provide actionable, research-backed information that helps farmers succeed."""


def describe_context(context: UserContext | None) -> str:
    if context is None:
        return "General farming inquiry"
    location = context.location or NOT_SPECIFIED
    farm_type = context.farm_type or NOT_SPECIFIED
    return f"Location: {location}, Farm type: {farm_type}"


def chat_system_prompt(context: UserContext | None = None) -> str:
    return CHAT_BRIEF.format(context=describe_context(context))


# ---- Fallback synthesis ----
# Keywords are English only, even for non-English questions (see DESIGN.md).
TOPIC_RULES: tuple[Rule, ...] = (
    Rule("irrigation", ("water", "irrigation")),
    Rule("pest_control", ("pest", "insect")),
    Rule("fertilization", ("fertilizer", "nutrient")),
)
GENERIC_TOPIC = Rule("generic", ())

FALLBACK_TEMPLATES = MappingProxyType({
    "irrigation": MappingProxyType({
        "english": "For irrigation guidance: Water crops early morning or evening. Check soil moisture 2-3 inches deep. Drip irrigation saves 30-50% water compared to flood irrigation.",
        "hindi": "सिंचाई मार्गदर्शन: फसलों को सुबह जल्दी या शाम को पानी दें। 2-3 इंच गहराई तक मिट्टी की नमी जाँचें। ड्रिप सिंचाई बाढ़ सिंचाई की तुलना में 30-50% पानी बचाती है।",
        "spanish": "Guía de riego: Riegue los cultivos temprano en la mañana o al atardecer. Revise la humedad del suelo a 5-8 cm de profundidad. El riego por goteo ahorra un 30-50% de agua frente al riego por inundación.",
        "portuguese": "Orientação de irrigação: Regue as culturas de manhã cedo ou ao entardecer. Verifique a umidade do solo a 5-8 cm de profundidade. A irrigação por gotejamento economiza 30-50% de água em relação à irrigação por inundação.",
    }),
    "pest_control": MappingProxyType({
        "english": "For pest control: Use neem oil spray (10ml per liter water). Introduce beneficial insects. Rotate crops annually. Remove infected plants immediately.",
        "hindi": "कीट नियंत्रण: नीम तेल का छिड़काव करें (10 मि.ली. प्रति लीटर पानी)। लाभकारी कीटों को बढ़ावा दें। हर साल फसल चक्र अपनाएँ। संक्रमित पौधों को तुरंत हटा दें।",
        "spanish": "Control de plagas: Use aceite de neem en aspersión (10 ml por litro de agua). Introduzca insectos benéficos. Rote los cultivos cada año. Retire de inmediato las plantas infectadas.",
        "portuguese": "Controle de pragas: Use óleo de neem em pulverização (10 ml por litro de água). Introduza insetos benéficos. Faça rotação de culturas anualmente. Remova imediatamente as plantas infectadas.",
    }),
    "fertilization": MappingProxyType({
        "english": "For fertilization: Test soil pH first. Use organic compost when possible. Apply nitrogen during growth phase, phosphorus during root development.",
        "hindi": "उर्वरक मार्गदर्शन: पहले मिट्टी का pH जाँचें। जहाँ संभव हो जैविक खाद का उपयोग करें। वृद्धि चरण में नाइट्रोजन और जड़ विकास के समय फॉस्फोरस दें।",
        "spanish": "Fertilización: Analice primero el pH del suelo. Use compost orgánico cuando sea posible. Aplique nitrógeno en la fase de crecimiento y fósforo durante el desarrollo de raíces.",
        "portuguese": "Adubação: Teste primeiro o pH do solo. Use composto orgânico sempre que possível. Aplique nitrogênio na fase de crescimento e fósforo durante o desenvolvimento das raízes.",
    }),
    "generic": MappingProxyType({
        "english": "I'm temporarily unable to process your specific question. For immediate farming advice, please contact your local agricultural extension office or visit your nearest Krishi Vigyan Kendra (KVK).",
        "tamil": "மன்னிக்கவும், தற்போது உங்கள் கேள்விக்கு பதிலளிக்க முடியவில்லை. உடனடி விவசாய ஆலோசனைக்கு உங்கள் உள்ளூர் வேளாண் நீட்டிப்பு அலுவலகத்தை தொடர்பு கொள்ளவும்.",
        "hindi": "क्षमा करें, अभी आपके प्रश्न का उत्तर देने में असमर्थ हूँ। तत्काल कृषि सलाह के लिए अपने स्थानीय कृषि विस्तार कार्यालय से संपर्क करें।",
        "bengali": "দুঃখিত, বর্তমানে আপনার প্রশ্নের উত্তর দিতে অক্ষম। তাৎক্ষণিক কৃষি পরামর্শের জন্য আপনার স্থানীয় কৃষি সম্প্রসারণ অফিসে যোগাযোগ করুন।",
        "telugu": "క్షమించండి, ప్రస్తుతం మీ ప్రశ్నకు సమాధానం ఇవ్వలేకపోతున్నాను. తక్షణ వ్యవసాయ సలహా కోసం మీ స్థానిక వ్యవసాయ విస్తరణ కార్యాలయాన్ని సంప్రదించండి.",
        "kannada": "ಕ್ಷಮಿಸಿ, ಪ್ರಸ್ತುತ ನಿಮ್ಮ ಪ್ರಶ್ನೆಗೆ ಉತ್ತರಿಸಲು ಸಾಧ್ಯವಾಗುತ್ತಿಲ್ಲ. ತಕ್ಷಣದ ಕೃಷಿ ಸಲಹೆಗಾಗಿ ನಿಮ್ಮ ಸ್ಥಳೀಯ ಕೃಷಿ ವಿಸ್ತರಣೆ ಕಚೇರಿಯನ್ನು ಸಂಪರ್ಕಿಸಿ.",
        "spanish": "En este momento no puedo procesar su pregunta. Para asesoría agrícola inmediata, comuníquese con su oficina local de extensión agrícola.",
        "portuguese": "No momento não consigo processar sua pergunta. Para orientação agrícola imediata, entre em contato com o escritório local de extensão rural.",
    }),
})


def fallback_topic(question: str) -> str:
    return first_match(TOPIC_RULES, question or "", default=GENERIC_TOPIC).tag


def fallback_response(question: str, language: str) -> str:
    templates = FALLBACK_TEMPLATES[fallback_topic(question)]
    return templates.get(language, templates[DEFAULT_LANGUAGE])
