# Data Layer
