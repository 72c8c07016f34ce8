"""Name tables for heap object classification.

Pure data module: immutable sets consumed by classifier.TypeClassifier.
Nothing here is mutated at runtime; operator excludes are layered on top by
the classifier, never merged into these tables.
"""

from types import MappingProxyType


# ─── Tracked Resource Types ──────────────────────────────────────────────────

# [LAW:one-source-of-truth] Base type -> NodeCounts field.
TYPE_TO_COUNT_KEY = MappingProxyType({
    "BufferGeometry": "geometry_count",
    "Material": "material_count",
    "Texture": "texture_count",
    "WebGLRenderTarget": "render_target_count",
    "Mesh": "mesh_count",
    "Group": "group_count",
})

EXACT_TARGET_TYPES = frozenset({"BufferGeometry", "Mesh", "Group"})

# Ordered: the first base type contained in a name wins.
BROAD_TARGET_TYPES: tuple[str, ...] = ("Material", "Texture", "WebGLRenderTarget")

BROAD_EXCLUSIONS = MappingProxyType({
    "Material": ("Loader", "Definition", "Creator"),
    "Texture": ("Loader", "Encoding"),
})

# Engine-internal synthetic node names.
INTERNAL_NAME_PREFIXES: tuple[str, ...] = ("(", "system /", "v8")


# ─── Library Allowlist ───────────────────────────────────────────────────────

KNOWN_THREEJS_TYPES = frozenset({
    "Scene", "Object3D", "Mesh", "Group", "SkinnedMesh", "InstancedMesh", "BatchedMesh", "LOD",
    "Points", "Line", "LineLoop", "LineSegments", "Sprite",
    "BufferGeometry", "InstancedBufferGeometry", "BoxGeometry", "CapsuleGeometry", "CircleGeometry",
    "ConeGeometry", "CylinderGeometry", "DodecahedronGeometry", "EdgesGeometry", "ExtrudeGeometry",
    "IcosahedronGeometry", "LatheGeometry", "OctahedronGeometry", "PlaneGeometry",
    "PolyhedronGeometry", "RingGeometry", "ShapeGeometry", "SphereGeometry", "TetrahedronGeometry",
    "TorusGeometry", "TorusKnotGeometry", "TubeGeometry", "WireframeGeometry", "Shape", "Path",
    "Material", "LineBasicMaterial", "LineDashedMaterial", "MeshBasicMaterial", "MeshDepthMaterial",
    "MeshDistanceMaterial", "MeshLambertMaterial", "MeshMatcapMaterial", "MeshNormalMaterial",
    "MeshPhongMaterial", "MeshPhysicalMaterial", "MeshStandardMaterial", "MeshToonMaterial",
    "PointsMaterial", "RawShaderMaterial", "ShaderMaterial", "ShadowMaterial", "SpriteMaterial",
    "Texture", "CanvasTexture", "CompressedArrayTexture", "CompressedCubeTexture",
    "CompressedTexture", "CubeTexture", "Data3DTexture", "DataArrayTexture", "DataTexture",
    "DepthTexture", "FramebufferTexture", "VideoTexture",
    "WebGLRenderTarget", "WebGLCubeRenderTarget", "WebGLArrayRenderTarget",
    "Light", "AmbientLight", "DirectionalLight", "HemisphereLight", "LightProbe", "PointLight",
    "RectAreaLight", "SpotLight", "LightShadow", "DirectionalLightShadow", "PointLightShadow",
    "SpotLightShadow",
    "Camera", "ArrayCamera", "OrthographicCamera", "PerspectiveCamera", "StereoCamera", "CubeCamera",
    "Audio", "AudioListener", "PositionalAudio",
    "AnimationClip", "AnimationMixer", "AnimationAction", "AnimationObjectGroup", "KeyframeTrack",
    "BooleanKeyframeTrack", "ColorKeyframeTrack", "NumberKeyframeTrack", "QuaternionKeyframeTrack",
    "StringKeyframeTrack", "VectorKeyframeTrack",
    "Raycaster", "Layers", "Clock", "EventDispatcher",
})


# ─── Denylists ───────────────────────────────────────────────────────────────

# Language built-ins plus class names generated inside the GLTF loader.
JS_BUILTINS = frozenset({
    "Object", "Array", "Function", "String", "Number", "Boolean", "Symbol", "Date",
    "Error", "EvalError", "RangeError", "ReferenceError", "SyntaxError", "TypeError", "URIError",
    "RegExp", "Map", "Set", "WeakMap", "WeakSet", "Promise",
    "ArrayBuffer", "SharedArrayBuffer", "DataView", "Atomics", "JSON", "Math", "Reflect",
    "Intl", "Collator", "DateTimeFormat", "ListFormat", "NumberFormat", "PluralRules",
    "RelativeTimeFormat", "Locale",
    "AggregateError", "FinalizationRegistry", "WeakRef", "Iterator", "AsyncIterator",
    "GeneratorFunction", "AsyncFunction", "AsyncGeneratorFunction", "InternalError",
    "SuppressedError", "DisposableStack", "AsyncDisposableStack",
    "CompileError", "LinkError", "RuntimeError", "TypedArray",
    "BigInt", "DisplayNames", "DurationFormat", "Segmenter",
    "GLTFBinaryExtension", "GLTFCubicSplineInterpolant", "GLTFCubicSplineQuaternionInterpolant",
    "GLTFDracoMeshCompressionExtension", "GLTFLightsExtension", "GLTFMaterialsAnisotropyExtension",
    "GLTFMaterialsBumpExtension", "GLTFMaterialsClearcoatExtension",
    "GLTFMaterialsEmissiveStrengthExtension", "GLTFMaterialsIorExtension",
    "GLTFMaterialsIridescenceExtension", "GLTFMaterialsSheenExtension",
    "GLTFMaterialsSpecularExtension", "GLTFMaterialsTransmissionExtension",
    "GLTFMaterialsUnlitExtension", "GLTFMaterialsVolumeExtension", "GLTFMeshGpuInstancing",
    "GLTFMeshQuantizationExtension", "GLTFMeshoptCompression", "GLTFParser", "GLTFRegistry",
    "GLTFTextureAVIFExtension", "GLTFTextureBasisUExtension", "GLTFTextureTransformExtension",
    "GLTFTextureWebPExtension",
})

WEBGL_INTERNALS = frozenset({
    "WebGLRenderingContext", "WebGL2RenderingContext", "WebGLActiveInfo", "WebGLBuffer",
    "WebGLContextEvent", "WebGLFramebuffer", "WebGLProgram", "WebGLQuery", "WebGLRenderbuffer",
    "WebGLSampler", "WebGLShader", "WebGLShaderPrecisionFormat", "WebGLSync",
    "WebGLTransformFeedback", "WebGLUniformLocation", "WebGLVertexArrayObject", "WebGLTexture",
    "OESTextureFloatLinear",
    "WebGLAnimation", "WebGLAttributes", "WebGLBackground", "WebGLBindingStates",
    "WebGLBufferRenderer", "WebGLCapabilities", "WebGLClipping", "WebGLCubeMaps",
    "WebGLCubeUVMaps", "WebGLExtensions", "WebGLGeometries", "WebGLIndexedBufferRenderer",
    "WebGLInfo", "WebGLMaterials", "WebGLMorphtargets", "WebGLMultipleRenderTargets",
    "WebGLObject", "WebGLObjects", "WebGLPrograms", "WebGLProperties", "WebGLRenderLists",
    "WebGLRenderStates", "WebGLRenderer", "WebGL1Renderer", "WebGLShaderCache", "WebGLShadowMap",
    "WebGLState", "WebGLTextures", "WebGLUniforms", "WebGLUniformsGroups", "WebGLUtils",
    "Uniform", "SingleUniform", "PureArrayUniform", "StructuredUniform", "UniformsGroup",
    "PropertyBinding", "PropertyMixer", "ImageUtils", "PMREMGenerator", "WebXRManager",
    "WebXRController", "WebGLShaderStage", "WebGLCubeRenderTarget", "WebGLArrayRenderTarget",
    "WebGL3DRenderTarget",
})

BROWSER_APIS = frozenset({
    "Window", "Event", "CustomEvent", "UIEvent", "MouseEvent", "KeyboardEvent", "TouchEvent",
    "PointerEvent", "MessageChannel", "MessageEvent", "MessagePort", "XMLHttpRequest", "URL",
    "URLSearchParams", "Location", "History", "Navigator", "Performance", "Console", "Worker",
    "SharedWorker", "WebSocket", "ReadableStream", "ReadableStreamDefaultController",
    "ReadableStreamDefaultReader", "Headers", "Request", "Response", "Blob", "ImageData",
    "ImageBitmap", "OffscreenCanvas", "OffscreenCanvasRenderingContext2D",
    "CanvasRenderingContext2D", "CanvasGradient",
    "AudioContext", "BaseAudioContext", "AudioNode", "AudioParam", "AudioBuffer",
    "AudioDestinationNode", "GainNode", "ProgressEvent", "BroadcastChannel", "Lock",
    "LockManager", "MediaQueryList", "Storage", "AbortController", "AbortSignal",
    "AudioBufferSourceNode", "AudioScheduledSourceNode", "DOMException", "EventTarget",
    "TextDecoder",
})

DOM_TYPES = frozenset({
    "Node", "Element", "Document", "CharacterData", "Text", "HTMLElement", "HTMLCollection",
    "NodeList", "DOMRect", "DOMRectReadOnly", "DOMStringMap", "DOMTokenList",
    "HTMLBodyElement", "HTMLButtonElement", "HTMLCanvasElement", "HTMLDivElement", "HTMLDocument",
    "HTMLHeadElement", "HTMLHeadingElement", "HTMLIFrameElement", "HTMLImageElement",
    "HTMLInputElement", "HTMLLinkElement", "HTMLScriptElement", "HTMLStyleElement",
    "CSSStyleDeclaration",
})

THREE_HELPERS = frozenset({
    "ArrowHelper", "AxesHelper", "BoxHelper", "Box3Helper", "CameraHelper",
    "DirectionalLightHelper", "GridHelper", "HemisphereLightHelper", "PlaneHelper",
    "PointLightHelper", "PolarGridHelper", "SkeletonHelper", "SpotLightHelper",
})

THREE_LOADERS = frozenset({
    "AnimationLoader", "AudioLoader", "BufferGeometryLoader", "CompressedTextureLoader",
    "CubeTextureLoader", "DataTextureLoader", "FileLoader", "ImageLoader", "ImageBitmapLoader",
    "Loader", "LoaderUtils", "MaterialLoader", "ObjectLoader", "TextureLoader", "GLTFLoader",
})

THREE_MATH = frozenset({
    "Box2", "Box3", "Color", "ColorKeyframeTrack", "Cylindrical", "Euler", "Frustum", "Interpolant",
    "CubicInterpolant", "DiscreteInterpolant", "LinearInterpolant", "QuaternionLinearInterpolant",
    "Line3", "Matrix3", "Matrix4", "Plane", "Quaternion", "Ray", "Sphere", "Spherical",
    "SphericalHarmonics3", "Triangle", "Vector2", "Vector3", "Vector4",
})

THREE_CURVES = frozenset({
    "ArcCurve", "CatmullRomCurve3", "CubicBezierCurve", "CubicBezierCurve3", "Curve", "CurvePath",
    "EllipseCurve", "LineCurve", "LineCurve3", "Path", "QuadraticBezierCurve",
    "QuadraticBezierCurve3", "Shape", "ShapePath", "SplineCurve",
})

TYPED_ARRAYS_AND_ATTRIBUTES = frozenset({
    "Int8Array", "Uint8Array", "Uint8ClampedArray", "Int16Array", "Uint16Array",
    "Int32Array", "Uint32Array", "Float32Array", "Float64Array", "BigInt64Array",
    "BigUint64Array", "Float16Array",
    "BufferAttribute", "GLBufferAttribute", "InstancedBufferAttribute",
    "InterleavedBufferAttribute", "Float16BufferAttribute", "Float32BufferAttribute",
    "Float64BufferAttribute", "Int8BufferAttribute", "Int16BufferAttribute",
    "Int32BufferAttribute", "Uint8BufferAttribute", "Uint16BufferAttribute",
    "Uint32BufferAttribute", "Uint8ClampedBufferAttribute",
})

# Auth/storage/realtime client internals and bundler/runtime leftovers.
THIRD_PARTY_CLIENTS = frozenset({
    "GoTrueAdminApi", "GoTrueClient", "SupabaseAuthClient", "SupabaseClient",
    "AuthApiError", "AuthError", "AuthImplicitGrantRedirectError",
    "AuthInvalidCredentialsError", "AuthInvalidJwtError", "AuthInvalidTokenResponseError",
    "AuthPKCEGrantCodeExchangeError", "AuthRetryableFetchError", "AuthSessionMissingError",
    "AuthUnknownError", "AuthWeakPasswordError", "CustomAuthError",
    "PostgrestBuilder", "PostgrestClient", "PostgrestError", "PostgrestFilterBuilder",
    "PostgrestQueryBuilder", "PostgrestTransformBuilder",
    "StorageApiError", "StorageBucketApi", "StorageClient", "StorageError", "StorageFileApi",
    "StorageUnknownError",
    "RealtimeChannel", "RealtimeClient", "RealtimePresence", "Timer", "Serializer", "Push",
    "FunctionsClient", "FunctionsError", "FunctionsFetchError", "FunctionsHttpError",
    "FunctionsRelayError",
    "Source", "HttpError", "Exception", "Deferred", "EventEmitter", "WebSocketClient",
    "WSWebSocketDummy", "WebpackLogger", "clientTapableSyncBailHook",
    "CallSite", "Global", "Instance", "Memory", "Module", "Table", "Tag",
    "ScriptWrappableTaskState",
    "_",
})

# [LAW:dataflow-not-control-flow] Denylists are checked as data, in this order.
BUILTIN_DENYLISTS: tuple[frozenset[str], ...] = (
    JS_BUILTINS,
    WEBGL_INTERNALS,
    BROWSER_APIS,
    DOM_TYPES,
    THREE_HELPERS,
    THREE_LOADERS,
    THREE_MATH,
    THREE_CURVES,
    TYPED_ARRAYS_AND_ATTRIBUTES,
    THIRD_PARTY_CLIENTS,
)
