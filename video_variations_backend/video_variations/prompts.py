SCRIPT_PROMPT_TEMPLATE = """Analyze this image thoroughly.
The product name is "{product_name}".

Task: create a JSON output with a script, video prompts and CAPTION COMPONENTS used to assemble {caption_count} caption variations.

1. "voiceover": a tight, clear voiceover script. Duration: {duration_hint}. Tone: an honest review told to a friend. End with a call to check the product link.

2. "captionComponents": building blocks for many unique short-video captions:
   - "hooks": 15 attention-grabbing headline or question variations.
   - "bodies": 10 body texts describing "{product_name}" from different angles (look, function, price, ...).
   - "ctas": 5 short call-to-action lines.
   - "hashtags": 5 hashtag sets (4-5 relevant tags each, one string per set).

3. "videoPrompts": an array of {prompt_count} distinct English visual prompts. Each must use a different camera move (close up, pan, zoom, ...). Focus on aesthetics.

FORMAT: JSON ONLY
{{
  "voiceover": "...",
  "captionComponents": {{
    "hooks": ["..."],
    "bodies": ["..."],
    "ctas": ["..."],
    "hashtags": ["..."]
  }},
  "videoPrompts": ["..."]
}}"""


# prompt count -> (caption variations, voiceover duration hint)
PLAN_TARGETS = {
    4: (5, "about 20 seconds (40-45 words)"),
    5: (10, "about 25 seconds (40-45 words)"),
    6: (15, "about 30 seconds (45-50 words)"),
}
