"""
Reference shot definitions.

The nine priority-1 shots form the Core Set: every lens (35/50/85mm) from the
front and both three-quarter angles. The remaining shots extend coverage for
profiles, backs, hands, calibration poses and expression variants.

Camera fields left out of a definition are derived by the cinematic calculator.
"""

T_POSE_TEMPLATE = """Character calibration sheet of {CHARACTER} ({PHYSIQUE_TRAITS}).

T-pose: standing straight, arms extended parallel to the ground, palms down,
feet shoulder width apart. {LENS}mm lens at {DISTANCE}m, azimuth {AZIMUTH}°,
elevation {ELEVATION}°. Full body centered with {HEADROOM} headroom, gaze {GAZE}.
Neutral expression. Plain seamless light grey background, even studio lighting.
EXPOSURE: f/{FSTOP}, ISO {ISO}, {SHUTTER}s.

reference_image: {REF_URL} (weight {REF_WEIGHT}), keep identity, face and costume identical.
NEGATIVE: {NEGATIVE_PROMPTS}"""


SHOT_DEFINITIONS = [
    # -------------------------------------------------------------------------
    # Core Set (priority 1)
    # -------------------------------------------------------------------------
    {
        "id": "35_front_full",
        "name": "35mm FRONT FULL",
        "lens_mm": 35, "angle": "front", "crop": "full",
        "expression": "neutral", "pose": "a_pose", "f_stop": 4.0,
        "priority": 1, "pack": "core",
        "scene_types": ["action", "establishing"],
        "description": "Full body front view in a natural A-pose for character establishment",
        "composition_notes": "Ensure full body visibility with natural A-pose stance.",
    },
    {
        "id": "35_3q_left_3q",
        "name": "35mm 3Q LEFT",
        "lens_mm": 35, "angle": "3q_left", "crop": "3q",
        "expression": "neutral", "pose": "relaxed",
        "priority": 1, "pack": "core",
        "scene_types": ["action", "dialogue"],
        "description": "Three-quarter body from the left for spatial reference",
    },
    {
        "id": "35_3q_right_3q",
        "name": "35mm 3Q RIGHT",
        "lens_mm": 35, "angle": "3q_right", "crop": "3q",
        "expression": "neutral", "pose": "relaxed",
        "priority": 1, "pack": "core",
        "scene_types": ["action", "dialogue"],
        "description": "Complementary angle to the left three-quarter",
    },
    {
        "id": "50_front_cu",
        "name": "50mm FRONT CU",
        "lens_mm": 50, "angle": "front", "crop": "cu",
        "expression": "neutral", "pose": "relaxed",
        "priority": 1, "pack": "core",
        "scene_types": ["dialogue", "emotional"],
        "description": "Conversational close-up with direct eye contact",
        "composition_notes": "Focus on facial expression and direct eye contact.",
    },
    {
        "id": "50_3q_left_cu",
        "name": "50mm 3Q LEFT CU",
        "lens_mm": 50, "angle": "3q_left", "crop": "cu",
        "expression": "thoughtful", "pose": "relaxed",
        "priority": 1, "pack": "core",
        "scene_types": ["dialogue"],
        "description": "Conversational close-up from the left for dynamic dialogue",
    },
    {
        "id": "50_3q_right_cu",
        "name": "50mm 3Q RIGHT CU",
        "lens_mm": 50, "angle": "3q_right", "crop": "cu",
        "expression": "determined", "pose": "relaxed",
        "priority": 1, "pack": "core",
        "scene_types": ["dialogue"],
        "description": "Conversational close-up from the right for balanced coverage",
        "composition_notes": "Mirror left angle positioning for consistent coverage.",
    },
    {
        "id": "85_front_mcu",
        "name": "85mm FRONT MCU",
        "lens_mm": 85, "angle": "front", "crop": "mcu",
        "expression": "subtle_concern", "pose": "relaxed", "f_stop": 2.5,
        "priority": 1, "pack": "core",
        "scene_types": ["emotional", "dialogue"],
        "description": "Emotional medium close-up with portrait compression",
    },
    {
        "id": "85_3q_left_mcu",
        "name": "85mm 3Q LEFT MCU",
        "lens_mm": 85, "angle": "3q_left", "crop": "mcu",
        "expression": "resolute", "pose": "relaxed",
        "priority": 1, "pack": "core",
        "scene_types": ["emotional"],
        "description": "Emotional medium close-up from the left",
    },
    {
        "id": "85_3q_right_mcu",
        "name": "85mm 3Q RIGHT MCU",
        "lens_mm": 85, "angle": "3q_right", "crop": "mcu",
        "expression": "vulnerable", "pose": "relaxed",
        "priority": 1, "pack": "core",
        "scene_types": ["emotional"],
        "description": "Emotional medium close-up from the right for complete coverage",
    },
    # -------------------------------------------------------------------------
    # Add-on pack
    # -------------------------------------------------------------------------
    {
        "id": "85_profile_left_mcu",
        "name": "85mm PROFILE LEFT MCU",
        "lens_mm": 85, "angle": "profile_left", "crop": "mcu",
        "expression": "neutral", "pose": "relaxed",
        "priority": 2, "pack": "addon",
        "scene_types": ["emotional", "transition"],
        "description": "Clean left profile for silhouette reference",
    },
    {
        "id": "85_profile_right_mcu",
        "name": "85mm PROFILE RIGHT MCU",
        "lens_mm": 85, "angle": "profile_right", "crop": "mcu",
        "expression": "neutral", "pose": "relaxed",
        "priority": 2, "pack": "addon",
        "scene_types": ["emotional", "transition"],
        "description": "Clean right profile for silhouette reference",
    },
    {
        "id": "35_back_full",
        "name": "35mm BACK FULL",
        "lens_mm": 35, "angle": "back", "crop": "full",
        "expression": "neutral", "pose": "a_pose",
        "priority": 2, "pack": "addon",
        "scene_types": ["establishing"],
        "description": "Full body from behind for costume and hair reference",
        "composition_notes": "Capture hair and costume details from behind.",
    },
    {
        "id": "85_hands_detail",
        "name": "HANDS DETAIL (Macro)",
        "lens_mm": 85, "angle": "front", "crop": "hands",
        "expression": "neutral", "pose": "hand_centered", "f_stop": 5.6,
        "elevation_deg": -15, "distance_m": 0.8,
        "priority": 2, "pack": "addon",
        "scene_types": ["action", "dialogue"],
        "description": "Hand detail for props, gestures and jewellery",
        "composition_notes": "Hands centered, fingers clearly separated.",
    },
    {
        "id": "50_concerned_cu",
        "name": "50mm CONCERNED CU",
        "lens_mm": 50, "angle": "front", "crop": "cu",
        "expression": "concerned", "pose": "relaxed",
        "priority": 2, "pack": "addon",
        "scene_types": ["emotional", "dialogue"],
        "description": "Concerned expression for worry and care scenes",
    },
    {
        "id": "35_tpose_full",
        "name": "T-POSE CALIBRATION",
        "lens_mm": 35, "angle": "front", "crop": "full",
        "expression": "neutral", "pose": "t_pose", "f_stop": 4.0,
        "thirds": "centered", "headroom": "loose", "gaze": "to_camera",
        "priority": 3, "pack": "addon",
        "prompt_template": T_POSE_TEMPLATE,
        "scene_types": ["establishing"],
        "description": "T-pose calibration for rigging and model alignment",
        "composition_notes": "Perfect T-pose with arms parallel to the ground.",
    },
    {
        "id": "85_vulnerable_mcu",
        "name": "85mm VULNERABLE MCU",
        "lens_mm": 85, "angle": "3q_left", "crop": "mcu",
        "expression": "vulnerable", "pose": "relaxed",
        "azimuth_deg": -25, "elevation_deg": 5, "distance_m": 1.4,
        "priority": 3, "pack": "addon",
        "scene_types": ["emotional"],
        "description": "Vulnerable expression for exposed emotional moments",
        "composition_notes": "Slight high angle enhances vulnerability.",
    },
    {
        "id": "35_45_left_3q",
        "name": "35mm 45° LEFT 3Q",
        "lens_mm": 35, "angle": "45_left", "crop": "3q",
        "expression": "neutral", "pose": "dynamic_stance",
        "distance_m": 2.5,
        "priority": 3, "pack": "addon",
        "scene_types": ["action"],
        "description": "Dynamic stance with extended angle coverage",
    },
    {
        "id": "35_45_right_3q",
        "name": "35mm 45° RIGHT 3Q",
        "lens_mm": 35, "angle": "45_right", "crop": "3q",
        "expression": "neutral", "pose": "dynamic_stance",
        "distance_m": 2.5,
        "priority": 3, "pack": "addon",
        "scene_types": ["action"],
        "description": "Dynamic stance mirrored to the right",
    },
    {
        "id": "85_determined_mcu",
        "name": "85mm DETERMINED MCU",
        "lens_mm": 85, "angle": "front", "crop": "mcu",
        "expression": "determined", "pose": "relaxed",
        "priority": 3, "pack": "addon",
        "scene_types": ["emotional", "action"],
        "description": "Determined expression for resolve and decision moments",
    },
    {
        "id": "50_high_angle_cu",
        "name": "50mm HIGH ANGLE CU",
        "lens_mm": 50, "angle": "front", "crop": "cu",
        "expression": "neutral", "pose": "relaxed",
        "elevation_deg": 15,
        "priority": 4, "pack": "addon",
        "scene_types": ["emotional", "dialogue"],
        "description": "High angle close-up for power dynamics and vulnerability",
        "composition_notes": "High angle creates psychological vulnerability.",
    },
    {
        "id": "50_low_angle_cu",
        "name": "50mm LOW ANGLE CU",
        "lens_mm": 50, "angle": "front", "crop": "cu",
        "expression": "neutral", "pose": "relaxed",
        "elevation_deg": -15,
        "priority": 4, "pack": "addon",
        "scene_types": ["dialogue", "action"],
        "description": "Low angle close-up for authority and strength",
        "composition_notes": "Low angle enhances character authority.",
    },
    {
        "id": "85_tight_left_cu",
        "name": "85mm TIGHT 15° LEFT CU",
        "lens_mm": 85, "angle": "front", "crop": "cu",
        "expression": "neutral", "pose": "relaxed",
        "azimuth_deg": -15, "distance_m": 1.2,
        "priority": 4, "pack": "addon",
        "scene_types": ["emotional"],
        "description": "Tight close-up with slight angle for intimate moments",
        "composition_notes": "Very tight framing with subtle angle variation.",
    },
    {
        "id": "85_tight_right_cu",
        "name": "85mm TIGHT 15° RIGHT CU",
        "lens_mm": 85, "angle": "front", "crop": "cu",
        "expression": "neutral", "pose": "relaxed",
        "azimuth_deg": 15, "distance_m": 1.2,
        "priority": 4, "pack": "addon",
        "scene_types": ["emotional", "dialogue"],
        "description": "Tight close-up from the right for intimate dialogue",
    },
    {
        "id": "50_back_3q",
        "name": "50mm BACK 3Q",
        "lens_mm": 50, "angle": "back", "crop": "3q",
        "expression": "neutral", "pose": "relaxed",
        "priority": 5, "pack": "addon",
        "scene_types": ["dialogue", "transition"],
        "description": "Over-the-shoulder back view for dialogue staging",
    },
    {
        "id": "50_25_left_mcu",
        "name": "50mm 25° LEFT MCU",
        "lens_mm": 50, "angle": "3q_left", "crop": "mcu",
        "expression": "neutral", "pose": "relaxed",
        "azimuth_deg": -25,
        "priority": 5, "pack": "addon",
        "scene_types": ["dialogue"],
        "description": "Medium close-up with subtle angle for natural conversation",
    },
    {
        "id": "50_25_right_mcu",
        "name": "50mm 25° RIGHT MCU",
        "lens_mm": 50, "angle": "3q_right", "crop": "mcu",
        "expression": "neutral", "pose": "relaxed",
        "azimuth_deg": 25,
        "priority": 5, "pack": "addon",
        "scene_types": ["dialogue"],
        "description": "Medium close-up from the right for conversation balance",
    },
    {
        "id": "35_135_left_full",
        "name": "35mm 135° LEFT FULL",
        "lens_mm": 35, "angle": "135_left", "crop": "full",
        "expression": "neutral", "pose": "walking",
        "priority": 6, "pack": "addon",
        "scene_types": ["transition", "establishing"],
        "description": "Rear three-quarter walking away, for exits and transitions",
    },
]

# Number of shots a core-set job always generates
CORE_SET_SIZE = sum(1 for d in SHOT_DEFINITIONS if d["priority"] == 1)
