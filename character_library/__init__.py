# Character Reference Library - reference image generation for named characters
